"""Request dispatch and asynchronous response splicing."""
