# -*- coding: utf-8 -*-
"""
Scheduling defaults. Scenario files and the web app override these keys.
"""

CONFIG = {
    # Processing order within a day; earlier shifts get first pick of the roster.
    "shift_order": ["noon", "phone", "morning", "afternoon", "verify1", "verify2"],

    # Used for any shift an employee holds without a dedicated constraint block.
    "default_shift_constraints": {
        "max_weekly_shifts": 5,
        "min_interval": 1,
        "available_days": [1, 2, 3, 4, 5],  # ISO: 1=Mon .. 7=Sun
        "max_consecutive_days": 1,
    },

    # History loaded before a run so interval/consecutive rules span the boundary.
    "lookback_days": 31,

    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}
