"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y los
  errores del dominio.
- El dominio no conoce HTTP, CLI, ni almacenamiento: solo conceptos del problema.
"""
