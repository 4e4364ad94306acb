"""blog/ -- Post storage for Inkpost.

Layer rule: blog/ may import from core/ and auth/ (posts.author_id is a
foreign key to auth's users table). It does NOT import from web/.

The store enforces no ownership rules. Who may edit or delete a post is
decided by the guard pipeline in web/guards.py before any mutation runs.
"""
