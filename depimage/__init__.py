"""depimage: build Python container images with stable dependency layers."""

__version__ = "0.1.0"
