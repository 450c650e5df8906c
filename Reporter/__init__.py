from .Reporter import Reporter, console
