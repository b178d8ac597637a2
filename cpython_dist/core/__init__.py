"""Run machinery: errors, cancellation, process spawning, workspace, orchestrator."""
