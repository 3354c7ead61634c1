import enum
from dataclasses import dataclass
from typing import Optional

from trainping.constants import (COUNT_DEFAULT, INTERVAL_DEFAULT, TRAIN_SIZE_DEFAULT,
                                 TRAIN_INTERVAL_DEFAULT, GAMMA_DEFAULT, RATE_DEFAULT,
                                 TRANSPORT_RAW, EXPORT_FILENAME)


class Policy(enum.Enum):
    BOUNDED_CYCLES = "bounded-cycles"
    TRAIN_CAPTURE = "train-capture"


@dataclass
class CampaignConfig:
    hostname: str
    address: str
    ipversion: int = 4
    source: Optional[str] = None
    transport: str = TRANSPORT_RAW
    count: int = COUNT_DEFAULT
    interval: int = INTERVAL_DEFAULT              # msec between trains
    train_size: int = TRAIN_SIZE_DEFAULT
    train_interval: int = TRAIN_INTERVAL_DEFAULT  # msec between probes of a train
    gamma: int = GAMMA_DEFAULT                    # msec
    rate: float = RATE_DEFAULT                    # events per minute
    pattern: tuple = ()
    export_path: str = EXPORT_FILENAME
    export: bool = False                          # write export_path at the end of the run
    debug: bool = False

    @property
    def policy(self) -> Policy:
        # trains enabled means every reply is captured as it arrives
        if self.train_size > 1:
            return Policy.TRAIN_CAPTURE
        return Policy.BOUNDED_CYCLES
