from dataclasses import dataclass
import pathlib


@dataclass(frozen=True)
class Settings:
    output_path: pathlib.Path

    @property
    def textures_path(self) -> pathlib.Path:
        return self.output_path / 'textures'

    @classmethod
    def from_args(cls, args):
        return cls(pathlib.Path(args.output))
