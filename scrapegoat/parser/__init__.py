"""CSS, XPath and regex parsers, structured data and automatic extraction, and selector tools."""