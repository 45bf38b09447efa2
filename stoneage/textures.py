from collections.abc import Iterable, Iterator
import logging
import pathlib
import struct
from threading import Lock
from typing import Protocol

from archive import AdrnEntry, RealBlock
from graphics import Texture, create_texture, pack_texture, unpack_texture
from settings import Settings


logger = logging.getLogger(__name__)


class TextureCacheError(RuntimeError):
    pass


class TextureSource(Protocol):
    def get_adrn_block(self, id: int) -> AdrnEntry: ...

    def get_real_block(self, address: int, size: int) -> RealBlock: ...


class TextureManager:
    """Decoded textures by id, memoized in memory and persisted under `textures/`.

    Each id is decoded at most once per cache directory: misses are
    serialized behind a single lock, and later lookups restore the
    persisted record instead of touching the archive.
    """

    def __init__(self, settings: Settings, archive: TextureSource) -> None:
        self.archive = archive
        self.texture_dir = settings.textures_path
        self.texture_dir.mkdir(parents=True, exist_ok=True)
        self._textures: dict[int, Texture] = {}
        self._lock = Lock()

    def texture_path(self, id: int) -> pathlib.Path:
        return self.texture_dir / f'{id}.bin'

    def get_texture(self, id: int) -> Texture:
        texture = self._textures.get(id)
        if texture is not None:
            return texture

        with self._lock:
            # another caller may have finished while we waited
            texture = self._textures.get(id)
            if texture is not None:
                return texture

            path = self.texture_path(id)
            if path.exists():
                texture = self._restore(path)
                logger.debug('Restored texture %d from %s', id, path)
            else:
                adrn = self.archive.get_adrn_block(id)
                real = self.archive.get_real_block(adrn.address, adrn.size)
                texture = create_texture(adrn, real)
                if len(texture.bitmap) != texture.width * texture.height:
                    logger.warning(
                        'Texture %d has %d bitmap bytes for %dx%d',
                        id, len(texture.bitmap), texture.width, texture.height,
                    )
                self._persist(path, texture)
                logger.debug('Decoded texture %d into %s', id, path)
            self._textures[id] = texture
        return texture

    def get_textures(self, ids: Iterable[int]) -> Iterator[tuple[int, Texture]]:
        for id in ids:
            yield id, self.get_texture(id)

    def _restore(self, path: pathlib.Path) -> Texture:
        try:
            return unpack_texture(path.read_bytes())
        except (OSError, ValueError, struct.error) as e:
            raise TextureCacheError(f'Could not read {path}') from e

    def _persist(self, path: pathlib.Path, texture: Texture) -> None:
        partial = path.with_suffix('.tmp')
        try:
            partial.write_bytes(pack_texture(texture))
            partial.replace(path)
        except (OSError, struct.error) as e:
            raise TextureCacheError(f'Could not write {path}') from e


def main(argv=None):
    import argparse

    import archive as sa_archive
    from graphics import to_image

    parser = argparse.ArgumentParser()
    parser.add_argument('fname', help='Path to the Real graphics file')
    parser.add_argument('-o', '--output', default='out', help='Output base directory')
    parser.add_argument('--ids', type=int, nargs='+', help='Texture ids to extract (default: all)')
    parser.add_argument('--png', action='store_true', help='Also export textures as PNG')
    parser.add_argument('--palette', type=pathlib.Path, help='Raw RGB palette for PNG export')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    settings = Settings.from_args(args)
    palette = list(args.palette.read_bytes()) if args.palette else None

    with sa_archive.open(pathlib.Path(args.fname)) as arc:
        ids = args.ids or sorted(int(name) for name in arc.index)
        manager = TextureManager(settings, arc)
        png_path = settings.output_path / 'png'
        for id, texture in manager.get_textures(ids):
            if args.png:
                png_path.mkdir(exist_ok=True, parents=True)
                to_image(texture, palette).save(png_path / f'{id}.png')
        logger.info('Extracted %d textures to %s', len(ids), manager.texture_dir)


if __name__ == '__main__':
    main()
