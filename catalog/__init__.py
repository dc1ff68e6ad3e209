# catalog/__init__.py
