# trip_amend/routes/__init__.py
from .amend import create_amend_blueprint

__all__ = ['create_amend_blueprint']
