# -*- coding: utf-8 -*-
"""
EconLang - economic indicator quality core.

Subpackages:
    - indicator_quality: per-indicator consensus targets, scale outlier
      detection and cumulative (YTD) time-series validation
"""

__version__ = "0.1.0"
