"""Sample data generators."""

from prime_crm.generators.base import BaseGenerator
from prime_crm.generators.process import ProcessGenerator

__all__ = ["BaseGenerator", "ProcessGenerator"]
