def get_current_version() -> str:
    """Get the current installed version of python2go."""
    try:
        from importlib.metadata import version

        return version("python2go")
    except Exception:
        return "0.0.0"
