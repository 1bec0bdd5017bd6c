from .basic_io import BasicIO, BufferedIO

__all__ = ['BasicIO', 'BufferedIO']
