from tracker import db


class TrackType:
    # GLOBAL: every territory transition
    TERRITORY_ALL = 'TERRITORY_ALL'
    # TARGETED: transitions where the named guild gains or loses a territory
    TERRITORY_SPECIFIC = 'TERRITORY_SPECIFIC'

    ALL = (TERRITORY_ALL, TERRITORY_SPECIFIC)


class Territory(db.Model):
    """Current owner of one territory; the table as a whole is the last accepted snapshot."""
    __tablename__ = 'territory'
    name = db.Column(db.String(100), primary_key=True)
    guild_name = db.Column(db.String(64), nullable=False, index=True)
    acquired = db.Column(db.DateTime, nullable=False)  # UTC
    attacker = db.Column(db.String(64), nullable=True)
    start_x = db.Column(db.Integer, nullable=False)
    start_z = db.Column(db.Integer, nullable=False)
    end_x = db.Column(db.Integer, nullable=False)
    end_z = db.Column(db.Integer, nullable=False)

    @classmethod
    def from_entry(cls, entry):
        row = cls(name=entry.name)
        row.update_from(entry)
        return row

    def update_from(self, entry):
        self.guild_name = entry.guild_name
        self.acquired = entry.acquired
        self.attacker = entry.attacker
        self.start_x = entry.start_x
        self.start_z = entry.start_z
        self.end_x = entry.end_x
        self.end_z = entry.end_z

    def to_dict(self):
        return {
            'name': self.name,
            'guild_name': self.guild_name,
            'acquired': self.acquired.isoformat() + 'Z',
            'attacker': self.attacker,
            'location': {
                'start_x': self.start_x,
                'start_z': self.start_z,
                'end_x': self.end_x,
                'end_z': self.end_z,
            },
        }


class TerritoryLog(db.Model):
    __tablename__ = 'territory_log'
    # Ids must never be reused, the tracker reads back ranges of them
    __table_args__ = {'sqlite_autoincrement': True}
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    territory_name = db.Column(db.String(100), nullable=False, index=True)
    old_guild_name = db.Column(db.String(64), nullable=False)
    old_guild_terr_amt = db.Column(db.Integer, nullable=False)
    new_guild_name = db.Column(db.String(64), nullable=False)
    new_guild_terr_amt = db.Column(db.Integer, nullable=False)
    acquired = db.Column(db.DateTime, nullable=False)  # UTC
    time_diff = db.Column(db.BigInteger, nullable=False)  # ms the old guild held the territory

    def to_dict(self):
        return {
            'id': self.id,
            'territory_name': self.territory_name,
            'old_guild_name': self.old_guild_name,
            'old_guild_terr_amt': self.old_guild_terr_amt,
            'new_guild_name': self.new_guild_name,
            'new_guild_terr_amt': self.new_guild_terr_amt,
            'acquired': self.acquired.isoformat() + 'Z',
            'time_diff': self.time_diff,
        }


class TrackChannel(db.Model):
    __tablename__ = 'track_channel'
    __table_args__ = (
        db.UniqueConstraint('type', 'guild_id', 'channel_id', 'guild_name', name='uq_track_channel'),
    )
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)
    guild_id = db.Column(db.BigInteger, nullable=False)
    channel_id = db.Column(db.BigInteger, nullable=False)
    guild_name = db.Column(db.String(64), nullable=True, index=True)  # TERRITORY_SPECIFIC only

    def to_dict(self):
        return {
            'type': self.type,
            'guild_id': self.guild_id,
            'channel_id': self.channel_id,
            'guild_name': self.guild_name,
        }


class ChannelFormat(db.Model):
    """Time zone / date format a destination wants instants rendered in.

    A row with a NULL channel_id applies to every channel of the guild.
    """
    __tablename__ = 'channel_format'
    __table_args__ = (
        db.UniqueConstraint('guild_id', 'channel_id', name='uq_channel_format'),
    )
    id = db.Column(db.Integer, primary_key=True)
    guild_id = db.Column(db.BigInteger, nullable=False)
    channel_id = db.Column(db.BigInteger, nullable=True)
    timezone = db.Column(db.String(64), nullable=True)
    date_format = db.Column(db.String(64), nullable=True)

    def to_dict(self):
        return {
            'guild_id': self.guild_id,
            'channel_id': self.channel_id,
            'timezone': self.timezone,
            'date_format': self.date_format,
        }

    @classmethod
    def find(cls, guild_id, channel_id):
        return cls.query.filter_by(guild_id=guild_id, channel_id=channel_id).first()
