"""CustomTkinter presentation layer.  Thin: all decisions live in services."""
