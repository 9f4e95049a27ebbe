"""Release bookkeeping for Emacs Lisp packages."""
