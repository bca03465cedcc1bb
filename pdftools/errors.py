class ToolInputError(ValueError):
    """Raised when a request carries input a tool cannot work with.

    Routes turn it into a 400 response carrying the message.
    """
