"""
Constants and configuration for the Spanlink relation engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os

from pydantic_settings import BaseSettings


SPANLINK_HOST = os.getenv("SPANLINK_HOST", "0.0.0.0")
SPANLINK_PORT = int(os.getenv("SPANLINK_PORT", "4323"))
SPANLINK_LOG_LEVEL = os.getenv("SPANLINK_LOG_LEVEL", "INFO").upper()

# canonical rendering of a missing attribute value
EMPTY_VALUE_TEXT = "empty"

# attribute attached to every span built by the theoretical model builders
TAG_BLOCK_PRODUCTION = "tag_block_production"

DESCRIPTION_PREFIX = "Analysis of dependency:"


class Settings(BaseSettings):
    host: str = SPANLINK_HOST
    port: int = SPANLINK_PORT
    log_level: str = SPANLINK_LOG_LEVEL

    # fixpoint scheduler
    scheduler_max_iterations: int = int(os.getenv("SPANLINK_SCHEDULER_MAX_ITERATIONS", "10000"))
    # relations are re-matched with this lower bound so only forward dependency matters
    scheduler_min_time_diff: float = -10.0

    # dependency analyzer
    analyzer_default_threshold: int = 1

    # theoretical models
    theoretical_default_start_time: float = 1.0
    theoretical_heights: int = 31
    theoretical_realistic_nodes: int = 20
    theoretical_realistic_seed: int = 0

    # built-in relation catalog window (seconds)
    relation_default_max_time_diff: float = 5.0

    stats_round_precision: int = 6

    model_config = {
        "env_prefix": "SPANLINK_",
        "extra": "ignore",
    }


settings = Settings()
