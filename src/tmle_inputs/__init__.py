"""tmle-inputs: preparation of TMLE inputs for genetic association studies."""

__version__ = "0.1.0"
