"""Точка входа в приложение."""
import argparse
import logging

from colorpress.app import ColorPressApp
from colorpress.config import AppConfig


def main() -> None:
    """Создаёт и запускает главное окно приложения."""
    parser = argparse.ArgumentParser(description="Цветокоррекция и сжатие изображений")
    parser.add_argument("image", nargs="?", help="файл для открытия при запуске")
    args = parser.parse_args()

    config = AppConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = ColorPressApp(config)
    if args.image:
        app.after(0, app.open_path, args.image)
    app.mainloop()


if __name__ == "__main__":
    main()
