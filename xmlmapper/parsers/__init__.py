"""Low level parsing of the XML input.

This handles:

* Tokenizing the XML input into events (:mod:`xmlmapper.parsers.xml`).
* The key expressions to address values in a fragment (:mod:`xmlmapper.parsers.keys`).
* Coercion of the scalar values (:mod:`xmlmapper.parsers.values`).
"""
