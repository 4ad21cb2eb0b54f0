"""
Triage Assist core.

Local clinical data store (patients, append-only medical records) plus the
onboarding and endemic-screening wizards that feed it. External judgement
(risk assessment, screening classification, document extraction, address
completion) is delegated to injectable collaborators.
"""

__version__ = "0.1.0"
