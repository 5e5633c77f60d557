"""
Diagnosis Engine
Signals -> rules -> ranked diagnoses -> recommended actions.
"""
from deal_doctor.engine.actions import generate_actions
from deal_doctor.engine.diagnosis import diagnose, diagnose_all
from deal_doctor.engine.rules import evaluate_rules
from deal_doctor.engine.signals import compute_signals

__all__ = [
    "compute_signals",
    "evaluate_rules",
    "diagnose",
    "diagnose_all",
    "generate_actions",
]
