"""Contains custom argparse actions & formatters."""

import argparse
from pathlib import Path


class ToggleActionFlag(argparse.Action):
    """Adds a 'no' prefix to disable store_true actions.

    For example, --debug will have an additional --no-debug to explicitly disable it.
    """

    def __init__(self, option_strings, dest=None, **kwargs):
        super().__init__(option_strings, dest, **kwargs)

        if len(option_strings) != 1:
            raise argparse.ArgumentError(
                self,
                f"An argument of type {self.__class__.__name__} "
                f"can only have one opt-string.",
            )

        option_string = option_strings[0].lstrip("-")
        self.option_strings = ["--" + option_string, "--no-" + option_string]
        self.dest = option_string.replace("-", "_") if dest is None else dest
        self.nargs = 0
        self.const = None

    def __call__(self, parser, namespace, values, option_string=None):
        if option_string.startswith("--no-"):
            setattr(namespace, self.dest, False)
        else:
            setattr(namespace, self.dest, True)


class ToggleActionFlagFormatter(argparse.HelpFormatter):
    """Condenses --help output.

    This changes the --help output, what is originally this:
        --bonds, --no-bonds
    will be condensed like this:
        --[no-]bonds
    """

    def _format_action_invocation(self, action):
        if isinstance(action, ToggleActionFlag):
            return ", ".join(
                [action.option_strings[0][:2] + "[no-]" + action.option_strings[0][2:]]
                + action.option_strings[2:]
            )
        else:
            return super()._format_action_invocation(action)


class CustomHelpFormatter(
    argparse.RawDescriptionHelpFormatter,
    argparse.ArgumentDefaultsHelpFormatter,
    ToggleActionFlagFormatter,
):
    pass


class ValidateCIFFileArgument(argparse.Action):
    """Checks that every provided file is an existing CIF file."""

    extension_choices = set((".cif",))

    def __call__(self, parser, namespace, values, option_string=None):
        if isinstance(values, str):
            values = [values]

        for value in values:
            fname = Path(value)
            if fname.suffix.lower() not in self.extension_choices:
                parser.error(
                    f"Provided file ({value}) is not a supported filetype: {self.extension_choices}."
                )
            if not fname.is_file():
                parser.error(f"Could not find CIF file ({value}).")

        setattr(namespace, self.dest, values)


class PositiveFloat(argparse.Action):
    """Rejects zero, negative and non-finite numbers."""

    def __call__(self, parser, namespace, value, option_string=None):
        if not 0.0 < value < float("inf"):
            parser.error(f"{option_string} must be a positive number, got {value}.")
        setattr(namespace, self.dest, value)
