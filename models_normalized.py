# models_normalized.py

from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from db import Base  # <-- use the existing Base from db.py


class Player(Base):
    """
    One row per NBA player from the PlayerIndex result set.
    Primary key is the upstream PERSON_ID.
    """
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    team_id = Column(Integer)
    team_slug = Column(String)
    team_city = Column(String)
    team_name = Column(String)
    position = Column(String)   # e.g. "G-F"
    jersey_number = Column(String)
    roster_status = Column(String)
    height = Column(String)
    weight = Column(String)
    from_year = Column(String)
    to_year = Column(String)
    points = Column(Float)
    rebounds = Column(Float)
    assists = Column(Float)
    stats_timeframe = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # relationships
    game_logs = relationship("PlayerGameLog", back_populates="player")


class PlayerGameLog(Base):
    """
    Per-player per-game box score line, from PlayerGameLog.

    One row per (player, game).
    """
    __tablename__ = "player_game_logs"

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    season_id = Column(String, nullable=False)
    game_id = Column(String, nullable=False)
    game_date = Column(String, nullable=False)
    matchup = Column(String, nullable=False)
    result = Column(String)  # "W" / "L"

    minutes = Column(Integer)
    fgm = Column(Integer)
    fga = Column(Integer)
    fg3m = Column(Integer)
    fg3a = Column(Integer)
    ftm = Column(Integer)
    fta = Column(Integer)
    o_reb = Column(Integer)
    d_reb = Column(Integer)
    rebounds = Column(Integer)
    assists = Column(Integer)
    steals = Column(Integer)
    blocks = Column(Integer)
    turnovers = Column(Integer)
    personal_fouls = Column(Integer)
    points = Column(Integer)
    plus_minus = Column(Integer)

    fg_pct = Column(Float)
    ft_pct = Column(Float)
    three_pt_pct = Column(Float)
    video_available = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("player_id", "game_id", name="uq_player_game_logs_player_game"),
    )

    player = relationship("Player", back_populates="game_logs")


class Lineup(Base):
    __tablename__ = "lineups"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    members = relationship(
        "LineupPlayer",
        back_populates="lineup",
        cascade="all, delete-orphan",
        order_by="LineupPlayer.id",
    )


class LineupPlayer(Base):
    __tablename__ = "lineup_players"

    id = Column(Integer, primary_key=True)
    lineup_id = Column(Integer, ForeignKey("lineups.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    custom_positions = Column(JSON, nullable=True)  # e.g. ["PG", "SG"]
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("lineup_id", "player_id", name="uq_lineup_players_lineup_player"),
    )

    lineup = relationship("Lineup", back_populates="members")
    player = relationship("Player")
