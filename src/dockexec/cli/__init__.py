"""dockexec command line interface."""
