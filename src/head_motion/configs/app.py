import logging
from importlib.metadata import version

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, PositiveInt, model_validator, Field

from .utils import LoggingConfig

logger = logging.getLogger(__name__)

class ProcessorSettings(BaseModel):
    """
    Filter and gesture-detection parameters.
    Angles are in degrees, rates in degrees per second.
    """
    sample_rate_hz: float = Field(30.0, gt=0, description="Nominal streaming rate of the sensor.")
    attitude_lpf_cutoff_hz: float = Field(8.0, gt=0, description="Cutoff of the roll/pitch/yaw low-pass filters.")
    rotation_median_window: PositiveInt = Field(5, description="Median window for rotation rate channels.")
    acceleration_median_window: PositiveInt = Field(3, description="Median window for user acceleration channels.")
    filtering_enabled: bool = True

    looking_down_threshold_deg: float = Field(-45.0, lt=0)
    looking_up_threshold_deg: float = Field(30.0, gt=0)
    rapid_motion_threshold_dps: float = Field(180.0, gt=0)
    head_shake_threshold_dps: float = Field(120.0, gt=0)
    event_cooldown_s: float = Field(1.0, ge=0, description="Minimum gap between two events of the same kind.")

    history_size: PositiveInt = Field(30, description="Filtered samples kept for pattern rules (~1s at 30Hz).")
    stats_window: PositiveInt = Field(100, description="Samples kept for processing time statistics.")

    model_config = {"validate_assignment": True}

    @model_validator(mode='after')
    def validate_history(self) -> "ProcessorSettings":
        if self.history_size < 10:
            raise ValueError('history_size must hold at least 10 samples for shake/nod detection.')
        return self

class SessionSettings(BaseModel):
    """Connection and retry behaviour of the session state machine."""
    max_retry_count: int = Field(5, ge=0)
    max_retry_delay_s: float = Field(30.0, gt=0)
    start_grace_s: float = Field(0.1, ge=0, description="Time the source has to report active after a start.")
    calibration_settle_s: float = Field(0.5, ge=0, description="Stillness delay before a calibration is committed.")
    buffer_size: PositiveInt = Field(100, description="Processed samples kept for late subscribers.")
    relax_connection_check: bool = Field(False, description="Start without a motion capable device (simulator only).")

class SimulatorSettings(BaseModel):
    """Parameters of the simulated head-worn device."""
    frequency_hz: float = Field(30.0, gt=0)
    noise_rad: float = Field(0.002, ge=0)
    seed: int | None = None
    authorized: bool = True
    device_connected: bool = True
    motion_capable: bool = True

class ZmqSinkConfig(BaseModel):
    enabled: bool = False
    host: str = "tcp://*:5556"

class AppSettings(BaseSettings):
    """
    Main application settings, loaded from environment variables and defaults.
    """
    processor: ProcessorSettings = Field(default_factory=ProcessorSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)

    # Sinks
    zmq: ZmqSinkConfig = Field(default_factory=ZmqSinkConfig)

    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    __version__: str = version("head-motion")

    model_config = SettingsConfigDict(
        env_prefix="HEAD_MOTION__",
        env_file=".env",
        env_nested_delimiter='__',
        case_sensitive=False
    )
