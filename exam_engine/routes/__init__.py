"""
Routes Package
Exports all route blueprints
"""
from exam_engine.routes.attempts import attempts_bp
from exam_engine.routes.public import public_bp

__all__ = ['attempts_bp', 'public_bp']
