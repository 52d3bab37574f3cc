from .image import *
