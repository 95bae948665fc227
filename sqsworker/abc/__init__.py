# pylint: disable=missing-docstring
from .component import Component
from .transport import Transport
