from app.extraction.profiles import DocumentType, get_profile
from app.extraction.prompt_loader import load_json_schema, load_prompt_template


class TestGetProfile:
    def test_auto_uses_generic_document_prompt(self) -> None:
        profile = get_profile(DocumentType.AUTO)
        assert profile.document_type is DocumentType.AUTO
        assert load_prompt_template("document").strip() in profile.prompt
        assert profile.json_schema == load_json_schema("document")

    def test_prompts_start_with_base_instructions(self) -> None:
        base = load_prompt_template("base").strip()
        for document_type in DocumentType:
            assert get_profile(document_type).prompt.startswith(base)

    def test_each_type_has_its_own_prompt(self) -> None:
        prompts = {get_profile(t).prompt for t in DocumentType}
        assert len(prompts) == len(DocumentType)

    def test_profiles_are_cached(self) -> None:
        assert get_profile(DocumentType.INVOICE) is get_profile(DocumentType.INVOICE)
