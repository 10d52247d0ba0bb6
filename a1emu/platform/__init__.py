"""pygame front end: window, host input and terminal peripherals."""
