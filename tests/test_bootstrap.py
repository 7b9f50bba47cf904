from unittest.mock import patch

import pytest

from flowpay.bootstrap import PRIVATE_KEY_ENV, ConfigurationError, bootstrap
from flowpay.config import AppConfig, PaymentConfig, PolymarketConfig


def _sample_config(**payment_overrides) -> AppConfig:
    payment = dict(enabled=True, pay_to_address="0xpayee")
    payment.update(payment_overrides)
    return AppConfig(
        polymarket=PolymarketConfig(
            host="https://clob.test",
            chain_id=80002,
            markets_url="https://gamma.test",
            request_timeout=4.0,
        ),
        payment=PaymentConfig(**payment),
    )


def test_bootstrap_returns_client_and_config():
    with patch("flowpay.bootstrap.PolymarketClient") as mock_client:
        client_instance = object()
        mock_client.from_private_key.return_value = client_instance

        client, config = bootstrap(_sample_config(), environ={PRIVATE_KEY_ENV: " 0xkey "})

    assert client is client_instance
    assert config.polymarket.chain_id == 80002
    args, kwargs = mock_client.from_private_key.call_args
    assert args == ("0xkey",)
    assert kwargs["host"] == "https://clob.test"
    assert kwargs["chain_id"] == 80002
    assert kwargs["markets"].api_url == "https://gamma.test"
    assert kwargs["markets"].request_timeout == 4.0


def test_bootstrap_loads_config_when_omitted():
    environ = {PRIVATE_KEY_ENV: "0xkey"}
    with patch("flowpay.bootstrap.load_config", return_value=_sample_config()) as mock_load, patch(
        "flowpay.bootstrap.PolymarketClient"
    ):
        _, config = bootstrap(environ=environ)

    mock_load.assert_called_once_with(environ=environ)
    assert config.payment.pay_to_address == "0xpayee"


def test_bootstrap_raises_on_missing_private_key():
    with patch("flowpay.bootstrap.PolymarketClient") as mock_client:
        with pytest.raises(ConfigurationError) as excinfo:
            bootstrap(_sample_config(), environ={})

    assert PRIVATE_KEY_ENV in str(excinfo.value)
    mock_client.from_private_key.assert_not_called()


def test_bootstrap_requires_pay_to_address_when_payments_enabled():
    with patch("flowpay.bootstrap.PolymarketClient"):
        with pytest.raises(ConfigurationError, match="PAYMENT_ADDRESS"):
            bootstrap(_sample_config(pay_to_address=""), environ={PRIVATE_KEY_ENV: "0xkey"})


def test_bootstrap_allows_missing_address_when_payments_disabled(caplog):
    with patch("flowpay.bootstrap.PolymarketClient"), caplog.at_level("WARNING"):
        bootstrap(
            _sample_config(enabled=False, pay_to_address=""), environ={PRIVATE_KEY_ENV: "0xkey"}
        )

    assert any(getattr(record, "event", None) == "payments_disabled" for record in caplog.records)


def test_bootstrap_rejects_network_x402_cannot_settle_on():
    with patch("flowpay.bootstrap.PolymarketClient") as mock_client:
        with pytest.raises(ConfigurationError, match="Unsupported payment network 'polygon'"):
            bootstrap(_sample_config(network="polygon"), environ={PRIVATE_KEY_ENV: "0xkey"})

    mock_client.from_private_key.assert_not_called()


def test_default_payment_network_passes_validation():
    with patch("flowpay.bootstrap.PolymarketClient"):
        _, config = bootstrap(
            AppConfig(payment=PaymentConfig(pay_to_address="0xpayee")),
            environ={PRIVATE_KEY_ENV: "0xkey"},
        )

    assert config.payment.network == "base"


def test_malformed_private_key_is_a_configuration_error():
    with patch("flowpay.bootstrap.PolymarketClient") as mock_client:
        mock_client.from_private_key.side_effect = ValueError("Non-hexadecimal digit found")

        with pytest.raises(ConfigurationError) as excinfo:
            bootstrap(_sample_config(), environ={PRIVATE_KEY_ENV: "not-a-key"})

    assert PRIVATE_KEY_ENV in str(excinfo.value)
    assert "not-a-key" not in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ValueError)
