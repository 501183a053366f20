"""Cross-cutting services used by every domain"""
