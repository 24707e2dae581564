"""Lottery engine: shuffling, pairing and result diagnostics."""

from .lottery import ConsistencyReport, LotteryEngine, LotteryStatistics
from .shuffle import fisher_yates

__all__ = ["ConsistencyReport", "LotteryEngine", "LotteryStatistics", "fisher_yates"]
