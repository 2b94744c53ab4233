"""HTTP blueprints; each view delegates to a service and renders its Result."""
