"""PawStock: session and stock-consistency core for the pet store inventory dashboard"""

__version__ = "1.0.0"
