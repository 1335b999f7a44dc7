"""Expected goals (xG) feature pipeline and xgboost training harness for NHL play-by-play."""

__version__ = "0.1.0"
