"""Knowledge graph, compatibility, obligation and dependency analysis engines."""
