from unittest.mock import patch

from gems_api import main


def test_run_serves_app_on_configured_address():
    with patch("gems_api.main.uvicorn.run") as mock_run:
        main.run()

    mock_run.assert_called_once_with(
        main.app,
        host=main.settings.app.host,
        port=main.settings.app.port,
        log_config=None,
    )
