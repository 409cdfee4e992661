"""
Utilitários de comunicação IPP, normalização e persistência
"""
