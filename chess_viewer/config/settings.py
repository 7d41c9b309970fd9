"""
Configuration settings for the Chess Viewer application, powered by Pydantic.

This module centralizes all tunable parameters, default values, and configuration
schemas. Using Pydantic allows for type-safe, self-documenting configuration
that can be loaded from environment variables, providing a clear separation of
configuration from code.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Nested Models for Configuration Schemas ---

class EngineSettings(BaseModel):
    """Configuration for the external UCI engine process."""
    path: Optional[str] = Field(None, description="The file path to the engine executable. Looked up on STOCKFISH_PATH and PATH when unset.")
    arguments: List[str] = Field(default_factory=list, description="Extra command-line arguments for the engine executable.")
    options: Dict[str, Any] = Field(default_factory=dict, description="UCI options configured after the handshake (e.g., {'Threads': 2, 'Hash': 128}). Options managed per search, such as MultiPV, are ignored.")
    init_timeout_s: float = Field(10.0, gt=0, description="Maximum wait for the `uciok`/`readyok` handshake.")
    sync_timeout_s: float = Field(2.0, gt=0, description="Maximum wait for the engine to answer `stop` with `bestmove`, and for `quit`.")


class AnalysisSettings(BaseModel):
    """Groups all settings related to live position analysis."""
    depth: int = Field(15, ge=1, description="The search depth requested for every position.")
    timeout_s: float = Field(10.0, gt=0, description="Maximum wait for a final result before the best partial result is returned.")
    progress_depth_step: int = Field(3, ge=1, description="Forward progress on every depth that is a multiple of this value.")
    progress_depth_floor: int = Field(10, ge=1, description="Forward progress on every new depth at or above this value.")
    mate_evaluation: float = Field(100.0, gt=0, description="Evaluation in pawns reported for a forced mate.")
    debounce_s: float = Field(0.15, ge=0, description="Delay after a position change before analysis starts.")

    @model_validator(mode='after')
    def validate_progress_floor(self) -> 'AnalysisSettings':
        """Ensures the progress floor is reachable within the requested depth."""
        if self.progress_depth_floor > self.depth and self.progress_depth_step > self.depth:
            raise ValueError("Configuration error: no progress milestone is reachable at the configured depth.")
        return self


class ImporterSettings(BaseModel):
    """Configuration for fetching games over HTTP."""
    user_agent: str = Field("chess-viewer/0.1", description="User-Agent header sent to chess platforms.")
    timeout_s: float = Field(20.0, gt=0, description="Total timeout of a single HTTP request.")
    lichess_max_games: int = Field(20, ge=1, description="Number of recent games fetched from Lichess.")
    retry_attempts: int = Field(3, ge=1, description="Attempts for requests failing with transient errors.")


# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'CHESS_VIEWER_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `CHESS_VIEWER_ANALYSIS__DEPTH=18`.
    """
    model_config = SettingsConfigDict(env_prefix='CHESS_VIEWER_', env_nested_delimiter='__')

    engine: EngineSettings = Field(default_factory=EngineSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    importer: ImporterSettings = Field(default_factory=ImporterSettings)
    log_level: str = "INFO"
