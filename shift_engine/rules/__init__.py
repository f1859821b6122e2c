"""Eligibility, candidate filtering and ranking rules."""

from .candidates import CandidateSelector
from .constraints import ConstraintEvaluator, Rejection
from .ranking import Ranker, stable_hash, tiebreak_seed

__all__ = ["CandidateSelector", "ConstraintEvaluator", "Ranker", "Rejection", "stable_hash", "tiebreak_seed"]
