"""Crew invocation engine.

Each call spawns a fresh crew-agents worker, captures its output, enforces a
deadline with SIGTERM -> SIGKILL escalation and classifies the outcome into
an `InvocationResult` carrying one `ErrorCategory`:

- `validation`: malformed request, rejected before any process is spawned.
- `not_installed`: the worker executable does not exist.
- `subprocess`: spawn failure or timeout.
- `crew`: the worker ran and returned or reported a failure.
- `config`: the supervisor settings themselves are invalid.

Callers branch on the category instead of matching error text; failures of
`invoke_crew` are returned as data and never raised.
"""