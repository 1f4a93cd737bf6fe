"""resultモジュールのテスト。"""

import pytest

from pytoolkit_optional import InvalidConstructionError, OptionalValue, Present
from pytoolkit_optional.result import Result


class TestResult:
    """Resultクラスのテストクラス。"""

    def test_result_ok_creation(self) -> None:
        """正常値でResultインスタンスが作成される。"""
        result = Result[int](42)

        assert result.is_ok()
        assert not result.is_error()
        assert result.value == 42

    def test_result_error_creation(self) -> None:
        """例外でResultインスタンスが作成される。"""
        error = InvalidConstructionError(None)
        result = Result[int](error)

        assert result.is_error()
        assert not result.is_ok()
        assert result.error is error

    def test_result_error_value_access_raises(self) -> None:
        """エラーのResultから値にアクセスすると保持している例外が発生する。"""
        result = OptionalValue.try_from_value(None)

        with pytest.raises(InvalidConstructionError, match="from_nullable"):
            _ = result.value

    def test_result_ok_error_access_raises(self) -> None:
        """正常値のResultからエラーにアクセスすると例外が発生する。"""
        result = Result[int](42)

        with pytest.raises(ValueError, match="Called error on Ok"):
            _ = result.error

    def test_result_value_or(self) -> None:
        """value_orはエラーの場合にデフォルト値を返す。"""
        assert Result[str]("成功").value_or("既定") == "成功"
        assert Result[str](RuntimeError("失敗")).value_or("既定") == "既定"

    def test_result_holding_container(self) -> None:
        """コンテナを保持するResultから値を取り出せる。"""
        result = OptionalValue.try_from_value("Avoid")

        assert result.value_or(None) == Present("Avoid")

    def test_result_none_value(self) -> None:
        """None値でもResultが正しく動作する。"""
        result = Result[None](None)

        assert result.is_ok()
        assert result.value is None

    def test_result_equality(self) -> None:
        """同じ値を持つResultインスタンスが等価と判定される。"""
        assert Result[int](42) == Result[int](42)
        assert Result[int](42) != Result[int](100)

        error = ValueError("同じエラー")
        assert Result[int](error) == Result[int](error)
        assert Result[int](error) != Result[int](ValueError("異なるエラー"))

    def test_result_immutability(self) -> None:
        """Resultインスタンスが不変オブジェクトであることを確認。"""
        result = Result[int](42)

        with pytest.raises(AttributeError):
            result._value = 100  # type: ignore
