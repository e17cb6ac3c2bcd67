"""Court availability and reservation backend."""
