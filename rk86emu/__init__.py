"""Radio-86RK emulation parts: an 8080 core, RK images, flash storage and palettes."""

__version__ = "0.1.0"