"""
Chanjo knowledge base.

Contains static clinical knowledge:
- Immunization schedules
"""
