"""
worksheet — schema model, computation engine and legacy migration for clinical worksheets.

Subpackages
- worksheet.core: grammar, pydantic schema models, tables, layouts, colours, hashing.
- worksheet.compute: computed-field evaluation.
- worksheet.formulation: formulation templates and the legacy formulation migrator.
- worksheet.io: settings, document loading and the schema validator.
"""

__version__ = "0.1.0"
