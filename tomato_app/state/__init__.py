"""
Phase state machine and timer runtime module.

Manages the Pomodoro phase cycle WORK -> SHORT_BREAK/LONG_BREAK -> WORK,
deadline reconciliation, and persistence of the timer state.
"""
