# blogapi/crud/__init__.py

from . import crud_comment, crud_post, crud_tag, crud_user

__all__ = ["crud_comment", "crud_post", "crud_tag", "crud_user"]
