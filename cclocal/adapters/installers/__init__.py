"""Install strategies for external tools, one module per route."""
