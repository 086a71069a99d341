from tracker import create_app, socketio, start_background_tasks

app = create_app()

if __name__ == '__main__':
    start_background_tasks(app)
    # Use SocketIO server so sink consumers can subscribe over websockets
    socketio.run(app, debug=True, use_reloader=False)
