"""Safari automation and history adapters."""
