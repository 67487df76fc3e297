"""
MedPredict - прогнозирование неявок пациентов
"""

__version__ = "0.1.0"
