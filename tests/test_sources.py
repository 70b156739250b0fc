import pytest

from litecontext import (
    ApplicationContext,
    DefinitionSourceError,
    MappingDefinitionSource,
    ObjectDefinition,
    TypeRegistry,
    XmlDefinitionSource,
    post_construct,
)


CONTEXT_XML = """\
<beans>
    <bean id="mailService" class="MailService">
        <property name="protocol" value="POP3"/>
        <property name="port" value="3000"/>
    </bean>
    <bean id="userService" class="UserService">
        <property name="mail_service" ref="mailService"/>
    </bean>
</beans>
"""


class MailService:
    def __init__(self):
        self.protocol = None
        self.port = 0
        self.initialized = False

    def set_protocol(self, protocol: str):
        self.protocol = protocol

    def set_port(self, port: int):
        self.port = port

    @post_construct
    def init(self):
        self.initialized = True


class UserService:
    def __init__(self):
        self.mail_service = None

    def set_mail_service(self, mail_service):
        self.mail_service = mail_service


def write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_xml_source_reads_definitions(tmp_path):
    source = XmlDefinitionSource(write(tmp_path, "context.xml", CONTEXT_XML))

    definitions = source.get_definitions()

    assert list(definitions) == ["mailService", "userService"]
    assert definitions["mailService"] == ObjectDefinition(
        "mailService", "MailService", value_dependencies={"protocol": "POP3", "port": "3000"}
    )
    assert definitions["userService"] == ObjectDefinition(
        "userService", "UserService", ref_dependencies={"mail_service": "mailService"}
    )


def test_xml_source_builds_a_wired_context(tmp_path):
    types = TypeRegistry()
    types.register("MailService", MailService)
    types.register("UserService", UserService)

    ctx = ApplicationContext(XmlDefinitionSource(write(tmp_path, "context.xml", CONTEXT_XML)), types)

    mail = ctx.get_by_type(MailService)
    assert (mail.protocol, mail.port, mail.initialized) == ("POP3", 3000, True)
    assert ctx.get_by_type(UserService).mail_service is mail


def test_xml_source_merges_files(tmp_path):
    first = write(tmp_path, "a.xml", '<beans><bean id="a" class="MailService"/></beans>')
    second = write(tmp_path, "b.xml", '<beans><bean id="b" class="UserService"/></beans>')

    assert list(XmlDefinitionSource(first, second).get_definitions()) == ["a", "b"]


def test_xml_source_rejects_duplicate_ids_across_files(tmp_path):
    first = write(tmp_path, "a.xml", '<beans><bean id="a" class="MailService"/></beans>')
    second = write(tmp_path, "b.xml", '<beans><bean id="a" class="UserService"/></beans>')

    with pytest.raises(DefinitionSourceError, match="Duplicate definition id 'a'"):
        XmlDefinitionSource(first, second).get_definitions()


NESTED_XML = """\
<beans>
    <bean id="mailService" class="MailService">
        <description>
            <bean id="example" class="UserService">
                <property name="mail_service" ref="mailService"/>
            </bean>
            <property name="port" value="1"/>
        </description>
        <property name="protocol" value="POP3"/>
    </bean>
</beans>
"""


def test_xml_source_reads_only_direct_children(tmp_path):
    definitions = XmlDefinitionSource(write(tmp_path, "nested.xml", NESTED_XML)).get_definitions()

    assert list(definitions) == ["mailService"]
    assert definitions["mailService"] == ObjectDefinition(
        "mailService", "MailService", value_dependencies={"protocol": "POP3"}
    )


@pytest.mark.parametrize(
    "content",
    [
        "<beans><bean id='a' class='MailService'>",
        "<objects/>",
        "<beans><bean class='MailService'/></beans>",
        "<beans><bean id='a'/></beans>",
        "<beans><bean id='a' class='MailService'><property value='1'/></bean></beans>",
        "<beans><bean id='a' class='MailService'><property name='p'/></bean></beans>",
        "<beans><bean id='a' class='MailService'><property name='p' value='1' ref='b'/></bean></beans>",
        "<beans><bean id='a' class='MailService'><property name='p' value='1'/><property name='p' ref='b'/></bean></beans>",
    ],
)
def test_xml_source_rejects_malformed_content(tmp_path, content):
    source = XmlDefinitionSource(write(tmp_path, "bad.xml", content))
    with pytest.raises(DefinitionSourceError):
        source.get_definitions()


def test_xml_source_missing_file_raises(tmp_path):
    with pytest.raises(DefinitionSourceError):
        XmlDefinitionSource(tmp_path / "missing.xml").get_definitions()


def test_xml_source_requires_a_path():
    with pytest.raises(ValueError):
        XmlDefinitionSource()


def test_xml_and_mapping_sources_agree(tmp_path):
    xml = XmlDefinitionSource(write(tmp_path, "context.xml", CONTEXT_XML)).get_definitions()
    mapping = MappingDefinitionSource(xml).get_definitions()
    assert mapping == xml


def test_mapping_source_rejects_duplicates():
    with pytest.raises(DefinitionSourceError):
        MappingDefinitionSource([ObjectDefinition("a", "A"), ObjectDefinition("a", "B")])


def test_mapping_source_rejects_mismatched_keys():
    with pytest.raises(DefinitionSourceError):
        MappingDefinitionSource({"a": ObjectDefinition("b", "A")})


def test_mapping_source_returns_fresh_copies():
    source = MappingDefinitionSource([ObjectDefinition("a", "A")])

    source.get_definitions()["a"].type_name = "B"

    assert source.get_definitions()["a"].type_name == "A"
