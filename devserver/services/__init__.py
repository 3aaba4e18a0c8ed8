"""Host collaborators the plugin system wires plugins into."""
