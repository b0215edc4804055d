"""Individual provisioning steps, in the order the orchestrator runs them."""
