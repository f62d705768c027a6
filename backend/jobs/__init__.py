"""
Scheduled and event-driven job runners.

Responsibilities:
- Fetch inputs from the document store, run a maintenance computation, write results.
- Log and record every run; re-raise transient store failures for the scheduler to retry.
- Provide a command-line entry point for the external scheduler.
"""
