from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, Float, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from .session import Base


class City(Base):
    """City catalog loaded from the seed CSV. Read-only during play."""
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    city = Column(String(100), nullable=False, index=True)
    city_ascii = Column(String(100), nullable=False, index=True)
    city_alt = Column(String(100), nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    country = Column(String(100), nullable=False)
    iso2 = Column(String(2), nullable=False, index=True)
    iso3 = Column(String(3), nullable=False)
    admin_name = Column(String(100), nullable=True)
    capital = Column(String(50), nullable=True)
    density = Column(Float, nullable=True)
    population = Column(BigInteger, nullable=True)
    population_proper = Column(BigInteger, nullable=True)
    ranking = Column(Integer, nullable=True)
    timezone = Column(String(50), nullable=True)
    same_name = Column(Boolean, default=False)
    source_id = Column(String(50), nullable=True)


class Game(Base):
    """Snapshot of an active game session, keyed by a public id."""
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)
    player_name = Column(String(50), nullable=False)
    state = Column(JSON, nullable=False)
    is_saved = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Score(Base):
    """Final score of a finished game."""
    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False)
    score = Column(Integer, nullable=False)
    game_mode = Column(String(20), nullable=False)
    rounds = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    guesses = relationship("Guess", back_populates="score_entry", cascade="all, delete-orphan")


class Guess(Base):
    """Individual round result belonging to a saved score."""
    __tablename__ = "guesses"

    id = Column(Integer, primary_key=True, index=True)
    score_id = Column(Integer, ForeignKey("scores.id", ondelete="CASCADE"), nullable=False)
    round_number = Column(Integer, nullable=False)
    actual_city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)
    guessed_city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)
    distance = Column(Float, nullable=False)
    points = Column(Integer, nullable=False)

    # Relationships
    score_entry = relationship("Score", back_populates="guesses")
