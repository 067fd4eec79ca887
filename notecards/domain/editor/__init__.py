from .models import DocumentNode, NodeVisitor, Visit

__all__ = ['DocumentNode', 'NodeVisitor', 'Visit']
