import pulumi


class InputValidationError(pulumi.RunError):
    """Raised when a component argument fails validation.

    Subclassing RunError makes the engine print the message without a
    Python traceback.
    """

    def __init__(self, argument, message):
        self.argument = argument
        super().__init__(f"invalid value for '{argument}': {message}")
