"""Map XML documents onto typed Python object graphs.

Two engines are available:

* :mod:`xmlmapper.streaming` builds an entity graph incrementally from parse events.
* :mod:`xmlmapper.decoding` decodes typed values from an already parsed XML tree.
"""

__version__ = "1.0.0"
