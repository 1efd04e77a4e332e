"""
Engine settings
"""
from enum import Enum

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class BronzePolicy(str, Enum):
    """How Kumite 3rd place is decided"""
    SHARED = "shared"               # both Semifinal losers share 3rd
    BRONZE_MATCH = "bronze_match"   # winners of Bronze matches take 3rd
    AUTO = "auto"                   # Bronze matches if any exist, else shared


class ScoringConfig(BaseSettings):
    """Kata scoring settings"""

    required_judges: int = Field(default=5, ge=3, description="Judge scores needed before a final score exists")
    min_middle_scores: int = Field(default=3, ge=1, description="Scores that must survive trimming")
    score_min: float = Field(default=5.0, description="Lowest valid judge score")
    score_max: float = Field(default=10.0, description="Highest valid judge score")

    class Config:
        env_prefix = "KATA_"
        case_sensitive = False


class ProgressionConfig(BaseSettings):
    """Round progression settings"""

    final_eight_size: int = Field(default=8, ge=1, description="Competitors advancing into the Final 8")
    final_four_size: int = Field(default=4, ge=1, description="Competitors advancing into the Final 4")
    bronze_policy: BronzePolicy = Field(default=BronzePolicy.AUTO, description="Kumite 3rd place rule")

    class Config:
        env_prefix = "PROGRESSION_"
        case_sensitive = False


class SchedulerConfig(BaseSettings):
    """Refresh scheduler settings"""

    refresh_interval_seconds: int = Field(default=10, ge=3, le=30, description="Polling interval (seconds)")
    report_dir: str = Field(default="data/reports", description="Report output directory")

    class Config:
        env_prefix = "SCHEDULER_"
        case_sensitive = False


scoring_config = ScoringConfig()
progression_config = ProgressionConfig()
scheduler_config = SchedulerConfig()
