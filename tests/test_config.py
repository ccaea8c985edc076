from config import PipelineConfig, load_config


def test_load_config_defaults_from_empty_env() -> None:
    config = load_config({})

    assert config.api_base_url == "http://localhost:4000"
    assert config.llm_provider == "gemini"
    assert config.search_configured is False
    assert config.llm_configured is False
    assert config.pages_back == 3
    assert config.candidate_cap == 10
    assert config.oldest_count == 5
    assert config.item_delay_seconds == 1.0


def test_load_config_reads_recognized_options() -> None:
    config = load_config({
        "API_BASE_URL": "https://store.example.com/",
        "GOOGLE_API_KEY": "g",
        "GOOGLE_CX": "cx",
        "LLM_PROVIDER": " OpenAI ",
        "LLM_API_KEY": "sk",
        "ITEM_DELAY_SECONDS": "0.25",
    })

    assert config.api_base_url == "https://store.example.com"
    assert config.search_configured is True
    assert config.llm_provider == "openai"
    assert config.llm_configured is True
    assert config.item_delay_seconds == 0.25


def test_blank_values_fall_back_to_defaults() -> None:
    config = load_config({"LLM_PROVIDER": "   ", "LLM_API_KEY": ""})

    assert config.llm_provider == "gemini"
    assert config.llm_configured is False


def test_origin_domain_strips_www() -> None:
    assert PipelineConfig(blog_base_url="https://www.beyondchats.com/blogs/").origin_domain == "beyondchats.com"
    assert PipelineConfig().origin_domain == "beyondchats.com"
