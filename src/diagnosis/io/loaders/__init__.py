from .errors import LoaderError
from .tree_loader import load_tree, read_all, read_tree_documents

__all__ = ["LoaderError", "load_tree", "read_all", "read_tree_documents"]
