"""Analysis modules for the different processing stages."""

from . import coverage
from . import growth
from . import heaps
from . import output
