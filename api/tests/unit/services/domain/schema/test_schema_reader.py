#!/usr/bin/env python3

import pytest

from soap_api.services.domain.schema.errors import ErrorClass, ParserError
from soap_api.services.domain.schema.model import (
    AttributeGroupRef,
    AttributeRef,
    Choice,
    ComplexContent,
    ComplexContentExtension,
    ComplexType,
    ElementRef,
    GroupRef,
    QName,
    Sequence,
    SimpleContent,
    SimpleType,
    SimpleTypeList,
    SimpleTypeRestriction,
    SimpleTypeUnion,
    Wildcard,
    xsd,
)
from soap_api.services.domain.schema.reader import XML_NS, read_schema

TEST_NS = "http://example.com/test"


class TestSchemaReader:
    """Test suite for reading XSD documents into the schema model"""

    @pytest.fixture
    def person_xsd(self):
        """Schema exercising references, groups and derivations"""
        return b"""<?xml version="1.0" encoding="UTF-8"?>
        <xs:schema
          xmlns:xs="http://www.w3.org/2001/XMLSchema"
          xmlns:test="http://example.com/test"
          targetNamespace="http://example.com/test"
          elementFormDefault="qualified"
          attributeFormDefault="unqualified">

          <xs:annotation><xs:documentation>People</xs:documentation></xs:annotation>

          <xs:element name="Person" type="test:PersonType"/>
          <xs:element name="Name" type="xs:string" nillable="true"/>
          <xs:attribute name="lang" type="xs:language"/>

          <xs:complexType name="PersonType">
            <xs:sequence>
              <xs:element ref="test:Name" minOccurs="0" maxOccurs="unbounded"/>
              <xs:group ref="test:ContactGroup" minOccurs="0"/>
              <xs:any namespace="##other" processContents="lax" minOccurs="0"/>
            </xs:sequence>
            <xs:attributeGroup ref="test:CommonAttributes"/>
            <xs:attribute ref="test:lang" use="required"/>
          </xs:complexType>

          <xs:complexType name="EmployeeType">
            <xs:complexContent>
              <xs:extension base="test:PersonType">
                <xs:sequence>
                  <xs:element name="employer" type="xs:string"/>
                </xs:sequence>
              </xs:extension>
            </xs:complexContent>
          </xs:complexType>

          <xs:complexType name="AmountType">
            <xs:simpleContent>
              <xs:extension base="xs:decimal">
                <xs:attribute name="currency" type="xs:string"/>
              </xs:extension>
            </xs:simpleContent>
          </xs:complexType>

          <xs:group name="ContactGroup">
            <xs:choice>
              <xs:element name="email" type="xs:string"/>
              <xs:element name="phone" type="xs:string"/>
            </xs:choice>
          </xs:group>

          <xs:attributeGroup name="CommonAttributes">
            <xs:attribute name="id" type="xs:ID"/>
            <xs:anyAttribute namespace="##other"/>
          </xs:attributeGroup>

          <xs:simpleType name="CodeType">
            <xs:restriction base="xs:string">
              <xs:maxLength value="3"/>
              <xs:enumeration value="ABC"/>
            </xs:restriction>
          </xs:simpleType>

          <xs:simpleType name="CodeListType">
            <xs:list itemType="test:CodeType"/>
          </xs:simpleType>

          <xs:simpleType name="CodeOrNumberType">
            <xs:union memberTypes="test:CodeType xs:int">
              <xs:simpleType>
                <xs:restriction base="xs:boolean"/>
              </xs:simpleType>
            </xs:union>
          </xs:simpleType>
        </xs:schema>"""

    def test_schema_attributes(self, person_xsd):
        """Test target namespace and form defaults are read"""
        schema = read_schema(person_xsd)

        assert schema.target_namespace == TEST_NS
        assert schema.element_form_default == "qualified"
        assert schema.attribute_form_default == "unqualified"

    def test_top_level_components(self, person_xsd):
        """Test top-level components are registered by local name"""
        schema = read_schema(person_xsd)

        assert list(schema.elements) == ["Person", "Name"]
        assert list(schema.attributes) == ["lang"]
        assert set(schema.types) == {
            "PersonType", "EmployeeType", "AmountType", "CodeType", "CodeListType", "CodeOrNumberType"
        }
        assert list(schema.groups) == ["ContactGroup"]
        assert list(schema.attribute_groups) == ["CommonAttributes"]

        person = schema.get_element(QName(TEST_NS, "Person"))
        assert person.top_level
        assert person.type_name == QName(TEST_NS, "PersonType")
        assert person.qname == QName(TEST_NS, "Person")
        assert schema.get_element(QName(TEST_NS, "Name")).nillable

    def test_lookup_outside_namespace(self, person_xsd):
        """Test lookups with a different namespace return None"""
        schema = read_schema(person_xsd)

        assert schema.get_element(QName("http://example.com/other", "Person")) is None
        assert schema.get_type(xsd("string")) is None

    def test_references_and_particles(self, person_xsd):
        """Test element, group and attribute references keep their QNames and occurrences"""
        schema = read_schema(person_xsd)
        person_type = schema.get_type(QName(TEST_NS, "PersonType"))

        assert isinstance(person_type, ComplexType)
        assert isinstance(person_type.particle, Sequence)

        name_ref, group_ref, wildcard = person_type.particle.items
        assert isinstance(name_ref, ElementRef)
        assert name_ref.ref_name == QName(TEST_NS, "Name")
        assert name_ref.min_occurs == 0
        assert name_ref.max_occurs is None

        assert isinstance(group_ref, GroupRef)
        assert group_ref.ref_name == QName(TEST_NS, "ContactGroup")
        assert group_ref.min_occurs == 0

        assert isinstance(wildcard, Wildcard)
        assert wildcard.namespace == "##other"
        assert wildcard.process_contents == "lax"

        group_member, attribute_ref = person_type.attributes
        assert isinstance(group_member, AttributeGroupRef)
        assert isinstance(attribute_ref, AttributeRef)
        assert attribute_ref.use == "required"

    def test_groups(self, person_xsd):
        """Test named model groups and attribute groups"""
        schema = read_schema(person_xsd)

        group = schema.get_group(QName(TEST_NS, "ContactGroup"))
        assert isinstance(group.particle, Choice)
        assert [item.name for item in group.particle.items] == ["email", "phone"]

        attribute_group = schema.get_attribute_group(QName(TEST_NS, "CommonAttributes"))
        assert [attribute.name for attribute in attribute_group.attributes] == ["id"]
        assert attribute_group.any_attribute.namespace == "##other"

    def test_content_models(self, person_xsd):
        """Test complex and simple content derivations"""
        schema = read_schema(person_xsd)

        employee = schema.get_type(QName(TEST_NS, "EmployeeType"))
        assert isinstance(employee.content_model, ComplexContent)
        extension = employee.content_model.content
        assert isinstance(extension, ComplexContentExtension)
        assert extension.base_type_name == QName(TEST_NS, "PersonType")
        assert extension.particle.items[0].name == "employer"

        amount = schema.get_type(QName(TEST_NS, "AmountType"))
        assert isinstance(amount.content_model, SimpleContent)
        assert amount.content_model.content.base_type_name == xsd("decimal")
        assert amount.content_model.content.attributes[0].name == "currency"

    def test_simple_types(self, person_xsd):
        """Test restriction facets, lists and unions"""
        schema = read_schema(person_xsd)

        code = schema.get_type(QName(TEST_NS, "CodeType"))
        assert isinstance(code, SimpleType)
        assert isinstance(code.content, SimpleTypeRestriction)
        assert code.content.base_type_name == xsd("string")
        assert [(facet.kind, facet.value) for facet in code.content.facets] == [
            ("maxLength", "3"), ("enumeration", "ABC")
        ]

        code_list = schema.get_type(QName(TEST_NS, "CodeListType"))
        assert isinstance(code_list.content, SimpleTypeList)
        assert code_list.content.item_type_name == QName(TEST_NS, "CodeType")

        union = schema.get_type(QName(TEST_NS, "CodeOrNumberType"))
        assert isinstance(union.content, SimpleTypeUnion)
        assert union.content.member_type_names == [QName(TEST_NS, "CodeType"), xsd("int")]
        assert len(union.content.base_types) == 1

    def test_default_namespace_resolution(self):
        """Test unprefixed QNames resolve against the default namespace"""
        schema = read_schema("""<schema xmlns="http://www.w3.org/2001/XMLSchema"
                                        targetNamespace="urn:test">
              <element name="count" type="int"/>
            </schema>""")

        assert schema.get_element(QName("urn:test", "count")).type_name == xsd("int")

    def test_unknown_prefix(self):
        """Test an undeclared prefix raises ParserError"""
        with pytest.raises(ParserError, match="Unknown namespace prefix"):
            read_schema("""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
                  <xs:element name="a" type="nope:Thing"/>
                </xs:schema>""")

    def test_xml_prefix_always_bound(self):
        """Test the xml prefix resolves without a namespace declaration"""
        schema = read_schema("""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                           targetNamespace="urn:test">
              <xs:complexType name="TextType">
                <xs:simpleContent>
                  <xs:extension base="xs:string">
                    <xs:attribute ref="xml:lang"/>
                  </xs:extension>
                </xs:simpleContent>
              </xs:complexType>
            </xs:schema>""")

        extension = schema.get_type(QName("urn:test", "TextType")).content_model.content
        lang, = extension.attributes
        assert isinstance(lang, AttributeRef)
        assert lang.ref_name == QName(XML_NS, "lang")

    def test_malformed_document(self):
        """Test malformed XML raises ParserError"""
        with pytest.raises(ParserError) as exc_info:
            read_schema("<xs:schema xmlns:xs='http://www.w3.org/2001/XMLSchema'>")

        assert exc_info.value.error_class == ErrorClass.INVALID_WSDL

    def test_entities_rejected(self):
        """Test entity declarations are rejected by the parser"""
        document = """<?xml version="1.0"?>
        <!DOCTYPE schema [<!ENTITY name "value">]>
        <xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
          <xs:element name="a" fixed="&name;" type="xs:string"/>
        </xs:schema>"""

        with pytest.raises(ParserError) as exc_info:
            read_schema(document)

        assert exc_info.value.error_class == ErrorClass.INVALID_WSDL

    def test_not_a_schema(self):
        """Test a non-schema root element is rejected"""
        with pytest.raises(ParserError, match="not an XML Schema"):
            read_schema("<root/>")
