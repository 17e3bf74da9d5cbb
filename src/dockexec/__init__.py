"""dockexec - run `go test -exec` binaries inside a container."""

__version__ = "0.1.0"
