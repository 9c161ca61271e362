"""
Tomato Clock - Pomodoro timer core

Background timer service for a Pomodoro-technique productivity timer.
Owns the work/break phase state machine, survives process suspension by
persisting an absolute deadline and reconciling it on restart, and keeps
a bounded history of completed work sessions for simple analytics.
"""

__version__ = "0.1.0"
__author__ = "Tomato Clock Team"
