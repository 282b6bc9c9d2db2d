# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete principal 'app' del backend de donaciones Colab ONGs.

Permite importar los módulos internos como 'app.*' cuando la carpeta
'backend' está en PYTHONPATH.

Autor: Equipo Colab ONGs
Fecha: 2026-03-12
"""

# Fin del archivo backend/app/__init__.py
