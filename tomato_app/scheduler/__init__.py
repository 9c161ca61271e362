"""
Wake-up scheduler module.

Named one-shot alarms that call back into the timer core when a phase
deadline is reached.
"""
