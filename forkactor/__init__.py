"""
Isolated-execution worker for configuration-management jobs.

Each request runs in a forked child process; the child's domain logging is
captured through a tee sink and the result (or failure) comes back to the
parent over a pipe.
"""

__version__ = '1.0.0'
